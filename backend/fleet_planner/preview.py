from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel

from .constants import OPTIONAL_SHEETS, REQUIRED_SHEETS
from .utils import canonical_rename, map_headers
from .workbook import find_sheet, open_workbook, read_workbook_bytes_from_s3


class PreviewRequest(BaseModel):
    s3_key: str
    max_sample_rows: int = 5


class SheetPreview(BaseModel):
    name: str
    headers: List[str]
    rowCount: int
    missingRequiredColumns: List[str]
    sample: List[Dict]


class PreviewResponse(BaseModel):
    sheets: List[SheetPreview]
    missingSheets: List[str]


def generate_preview(req: PreviewRequest) -> PreviewResponse:
    excel = open_workbook(read_workbook_bytes_from_s3(req.s3_key))

    sheets: List[SheetPreview] = []
    missing_sheets: List[str] = []
    for name, required in {**REQUIRED_SHEETS, **OPTIONAL_SHEETS}.items():
        sheet = find_sheet(excel, name)
        if sheet is None:
            if name in REQUIRED_SHEETS:
                missing_sheets.append(name)
            continue
        df = canonical_rename(excel.parse(sheet))
        headers = list(df.columns.astype(str))
        mapping = map_headers(headers, required)
        head = df.head(req.max_sample_rows)
        sample_rows = (
            # NaN is not valid JSON
            head.astype(object).where(head.notna(), None).to_dict(orient="records")
            if not df.empty
            else []
        )
        sheets.append(SheetPreview(
            name=name,
            headers=headers,
            rowCount=int(len(df)),
            missingRequiredColumns=sorted(c for c in required if c not in mapping),
            sample=sample_rows,
        ))

    return PreviewResponse(sheets=sheets, missingSheets=missing_sheets)
