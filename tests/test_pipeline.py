import csv
import http.client
import io
from email.message import Message

import pandas as pd
import pytest

from qshare import transport as transport_mod
from qshare.cache import CacheStore
from qshare.errors import ParseError
from qshare.pipeline import DataResult, fetch, format_frame
from qshare.sources import EastmoneySpotEmDataSource, SinaIndexSpotDataSource
from qshare.transport import UrllibTransport

DAY = "2024-05-06"


class ExplodingTransport:
    def __init__(self) -> None:
        self.calls = 0

    def execute(self, request):
        self.calls += 1
        raise AssertionError("transport must not be called on a cache hit")


def test_object_array_end_to_end_creates_cache_file(tmp_path, sina_body, fake_transport):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path / "cache")
    transport = fake_transport(sina_body)

    result = fetch(source, store, transport, today=DAY)

    assert isinstance(result, DataResult)
    assert result.data_id == source.identity()
    assert len(result.data) == 1
    assert result.data.iloc[0]["代码"] == "sh000001"
    assert result.data.iloc[0]["symbol"] == "sh000001"
    assert len(transport.calls) == 1
    assert transport.calls[0] == source.build_request()

    cache_file = tmp_path / "cache" / f"{source.identity()}-{DAY}.csv"
    assert cache_file.is_file()
    with cache_file.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert "代码" in rows[0]
    assert len(rows) == 2
    assert rows[1][rows[0].index("代码")] == "sh000001"


def test_second_fetch_same_day_hits_cache(tmp_path, sina_body, fake_transport):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)
    transport = fake_transport(sina_body)

    first = fetch(source, store, transport, today=DAY)
    second = fetch(source, store, transport, today=DAY)

    assert len(transport.calls) == 1
    assert second.data_id == first.data_id
    pd.testing.assert_frame_equal(second.data, first.data, check_dtype=False)


def test_next_day_fetches_again(tmp_path, sina_body, fake_transport):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)
    transport = fake_transport(sina_body)

    fetch(source, store, transport, today=DAY)
    fetch(source, store, transport, today="2024-05-07")

    assert len(transport.calls) == 2
    assert store.exists(source.identity(), "2024-05-07")


def test_cache_hit_makes_no_transport_calls(tmp_path, em_body):
    source = EastmoneySpotEmDataSource()
    store = CacheStore(tmp_path)
    store.store(source.identity(), DAY, format_frame(source, em_body))
    transport = ExplodingTransport()

    result = fetch(source, store, transport, today=DAY)

    assert transport.calls == 0
    assert result.data_id == source.identity()
    assert result.data["代码"].tolist() == ["000001", "600000"]
    assert result.data["最新价"].tolist() == [11.5, -1.0]


def test_malformed_body_propagates_parse_error(tmp_path, fake_transport):
    source = EastmoneySpotEmDataSource()
    store = CacheStore(tmp_path)
    transport = fake_transport("<html>403 Forbidden</html>")

    with pytest.raises(ParseError):
        fetch(source, store, transport, today=DAY)
    assert not store.exists(source.identity(), DAY)


def test_transport_failure_returns_tagged_empty_result(tmp_path, failing_transport):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)

    result = fetch(source, store, failing_transport, today=DAY)

    assert result.data_id == source.identity()
    assert result.is_empty
    assert not store.exists(source.identity(), DAY)


def test_corrupt_cache_returns_untagged_empty_result(tmp_path, caplog):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)
    store.path_for(source.identity(), DAY).write_text("garbage\n1\n", encoding="utf-8")
    transport = ExplodingTransport()

    with caplog.at_level("WARNING"):
        result = fetch(source, store, transport, today=DAY)

    assert result.data_id is None
    assert result.is_empty
    assert transport.calls == 0
    assert "returning an empty result" in caplog.text


def test_cache_write_failure_still_returns_data(tmp_path, sina_body, fake_transport, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    source = SinaIndexSpotDataSource()
    store = CacheStore(blocker / "cache")

    with caplog.at_level("WARNING"):
        result = fetch(source, store, fake_transport(sina_body), today=DAY)

    assert result.data_id == source.identity()
    assert len(result.data) == 1
    assert "Failed to write cache file" in caplog.text


def test_empty_payload_is_cached_with_target_columns(tmp_path, fake_transport):
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)

    result = fetch(source, store, fake_transport("[]"), today=DAY)

    assert result.is_empty
    assert set(result.data.columns) == set(source.output_schema())
    assert store.exists(source.identity(), DAY)


def test_truncated_response_degrades_to_tagged_empty_result(tmp_path, monkeypatch):
    class TruncatedResponse(io.BytesIO):
        headers = Message()

        def read(self, *args):
            raise http.client.IncompleteRead(b"[{", 100)

    monkeypatch.setattr(
        transport_mod.urllib.request, "urlopen", lambda req, timeout: TruncatedResponse()
    )
    source = SinaIndexSpotDataSource()
    store = CacheStore(tmp_path)

    result = fetch(source, store, UrllibTransport(), today=DAY)

    assert result.data_id == source.identity()
    assert result.is_empty
    assert not store.exists(source.identity(), DAY)
