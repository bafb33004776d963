"""Eastmoney A-share spot quotes (东方财富网 沪深京 A 股实时行情).

A single request returns every listed A share. Heavy polling gets the client
IP blocked for a while, which is why results are cached per day.
"""
from __future__ import annotations

import pandas as pd

from ..errors import ParseError
from ..table import FLOAT64, TEXT
from ..transport import RequestSpec, build_url
from .base import DataSource, decode_records

BASE_URL = "http://82.push2.eastmoney.com/api/qt/clist/get"

REQUEST_PARAMS = (
    ("pn", "1"),
    ("pz", "10000"),
    ("po", "1"),
    ("np", "1"),
    ("ut", "bd1d9ddb04089700cf9c27f6f7426281"),
    ("fltt", "2"),
    ("invt", "2"),
    ("fid", "f3"),
    ("fs", "m:0 t:6,m:0 t:80,m:1 t:2,m:1 t:23,m:0 t:81 s:2048"),
    (
        "fields",
        "f1,f2,f3,f4,f5,f6,f7,f8,f9,f10,f12,f13,f14,f15,f16,f17,f18,f20,f21,f23,f24,f25,f22,f11,f62,f128,f136,f115,f152",
    ),
    # Static value; part of the cache key.
    ("_", "1623833739532"),
)

FIELD_MAPPING = (
    ("f12", "代码"),
    ("f14", "名称"),
    ("f2", "最新价"),
    ("f3", "涨跌幅"),
    ("f4", "涨跌额"),
    ("f5", "成交量"),
    ("f6", "成交额"),
    ("f7", "振幅"),
    ("f15", "最高"),
    ("f16", "最低"),
    ("f17", "今开"),
    ("f18", "昨收"),
    ("f10", "量比"),
    ("f8", "换手率"),
    ("f9", "市盈率-动态"),
    ("f23", "市净率"),
    ("f20", "总市值"),
    ("f21", "流通市值"),
    ("f22", "涨速"),
    ("f11", "5分钟涨跌"),
    ("f24", "60日涨跌幅"),
    ("f25", "年初至今涨跌幅"),
    ("f12", "symbol"),
)

TEXT_FIELDS = ("f12", "f14")

NO_DATA_SENTINEL = '"-"'
NO_DATA_PLACEHOLDER = "-1"


class EastmoneySpotEmDataSource(DataSource):
    name = "eastmoney"

    def build_request(self) -> RequestSpec:
        return RequestSpec("GET", build_url(BASE_URL, REQUEST_PARAMS))

    def field_mapping(self):
        return FIELD_MAPPING

    def raw_schema(self):
        schema = {src: FLOAT64 for src, _ in FIELD_MAPPING}
        schema.update({src: TEXT for src in TEXT_FIELDS})
        return schema

    def output_schema(self):
        schema = {}
        for src, target in FIELD_MAPPING:
            schema[target] = TEXT if src in TEXT_FIELDS else FLOAT64
        return schema

    def parse_frame(self, raw_body: str) -> pd.DataFrame:
        # Body looks like {"rc":0,...,"data":{"total":N,"diff":[...]}}; keep the array.
        start = raw_body.find("[")
        if start < 0:
            raise ParseError("Eastmoney response has no '[' marker.")
        payload = raw_body[start : len(raw_body) - 2]
        # Suspended stocks report "-" for numeric fields.
        payload = payload.replace(NO_DATA_SENTINEL, NO_DATA_PLACEHOLDER)
        return decode_records(payload)
