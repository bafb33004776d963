"""Sina Finance index spot quotes (新浪财经 行情中心 指数).

http://vip.stock.finance.sina.com.cn/mkt/#hs_s
"""
from __future__ import annotations

import pandas as pd

from ..table import FLOAT64, TEXT
from ..transport import RequestSpec, build_url
from .base import DataSource, decode_records

BASE_URL = (
    "http://vip.stock.finance.sina.com.cn/quotes_service/api/json_v2.php/"
    "Market_Center.getHQNodeDataSimple"
)

REQUEST_PARAMS = (
    ("page", "1"),
    ("num", "400"),
    ("sort", "symbol"),
    ("asc", "1"),
    ("node", "hs_s"),
    ("_s_r_a", "page"),
)

# symbol,name,trade,pricechange,changepercent,buy,sell,settlement,open,high,low,volume,amount,code,ticktime
FIELD_MAPPING = (
    ("symbol", "代码"),
    ("name", "名称"),
    ("trade", "最新价"),
    ("changepercent", "涨跌幅"),
    ("pricechange", "涨跌额"),
    ("volume", "成交量"),
    ("amount", "成交额"),
    ("buy", "买"),
    ("high", "最高"),
    ("low", "最低"),
    ("open", "今开"),
    ("settlement", "昨收"),
    ("sell", "卖"),
    ("ticktime", "时间"),
    ("code", "code"),
    ("symbol", "symbol"),
)

TEXT_FIELDS = ("symbol", "name", "ticktime", "code")


class SinaIndexSpotDataSource(DataSource):
    name = "sina"

    def build_request(self) -> RequestSpec:
        return RequestSpec("GET", build_url(BASE_URL, REQUEST_PARAMS))

    def field_mapping(self):
        return FIELD_MAPPING

    def raw_schema(self):
        return {src: TEXT if src in TEXT_FIELDS else FLOAT64 for src, _ in FIELD_MAPPING}

    def output_schema(self):
        return {
            "symbol": TEXT,
            "代码": TEXT,
            "名称": TEXT,
            "最新价": FLOAT64,
            "涨跌幅": FLOAT64,
            "涨跌额": FLOAT64,
            "成交量": FLOAT64,
            "成交额": FLOAT64,
            "买": FLOAT64,
            "最高": FLOAT64,
            "最低": FLOAT64,
            "今开": FLOAT64,
            "昨收": FLOAT64,
            "卖": FLOAT64,
            "时间": TEXT,
            "code": TEXT,
        }

    def parse_frame(self, raw_body: str) -> pd.DataFrame:
        return decode_records(raw_body)
