import json

import pytest

from qshare.errors import TransportError


class FakeTransport:
    def __init__(self, body: str | None = None, exc: Exception | None = None) -> None:
        self.body = body
        self.exc = exc
        self.calls = []

    def execute(self, request):
        self.calls.append(request)
        if self.exc is not None:
            raise self.exc
        return self.body


def _em_row(code: str, name: str, price) -> dict:
    row = {
        "f1": 2,
        "f2": price,
        "f3": -0.52,
        "f4": -0.06,
        "f5": 523012,
        "f6": 601234567.0,
        "f7": 1.21,
        "f8": 0.27,
        "f9": 4.35,
        "f10": 0.88,
        "f11": 0.09,
        "f12": code,
        "f13": 0,
        "f14": name,
        "f15": 11.62,
        "f16": 11.48,
        "f17": 11.55,
        "f18": 11.56,
        "f20": 224800000000.0,
        "f21": 224790000000.0,
        "f22": 0.0,
        "f23": 0.55,
        "f24": 3.1,
        "f25": -1.7,
        "f62": 1234.0,
        "f115": 4.1,
        "f128": "-",
        "f136": "-",
        "f152": 2,
    }
    return row


def eastmoney_body(rows: list[dict]) -> str:
    payload = json.dumps(rows, ensure_ascii=False)
    return '{"rc":0,"rt":6,"svr":181669437,"lt":1,"full":1,"data":{"total":%d,"diff":%s}}' % (
        len(rows),
        payload,
    )


SINA_BODY = json.dumps(
    [
        {
            "symbol": "sh000001",
            "name": "上证指数",
            "trade": "2978.71",
            "pricechange": "-26.679",
            "changepercent": "-0.89",
            "buy": "0",
            "sell": "0",
            "settlement": "3005.3934",
            "open": "2995.3575",
            "high": "3006.2746",
            "low": "2977.1731",
            "volume": 251241582,
            "amount": 290107550274,
            "code": "000001",
            "ticktime": "14:49:47",
        }
    ],
    ensure_ascii=False,
)


@pytest.fixture
def em_rows():
    return [
        _em_row("000001", "平安银行", 11.50),
        _em_row("600000", "浦发银行", "-"),
    ]


@pytest.fixture
def make_em_body():
    return eastmoney_body


@pytest.fixture
def em_body(em_rows):
    return eastmoney_body(em_rows)


@pytest.fixture
def sina_body():
    return SINA_BODY


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def failing_transport():
    return FakeTransport(exc=TransportError("connection reset"))
