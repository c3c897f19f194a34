"""CSV export of a test design document.

Columns map 1:1 to row fields, in row order, with localized headers. The
output starts with a UTF-8 BOM so spreadsheet apps detect the encoding.
"""

import csv
import io

from testdesign.schemas.ir import DesignDocument

CSV_BOM = "\ufeff"

# (row field, column header)
CSV_COLUMNS = (
    ("Case", "ケース"),
    ("Step", "操作内容"),
    ("Expected", "期待結果"),
    ("Tag", "タグ"),
    ("Priority", "優先度"),
    ("remarks", "備考"),
)


def render_csv(document: DesignDocument) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for _, header in CSV_COLUMNS])
    for row in document.rows:
        values = row.model_dump(by_alias=True)
        writer.writerow([values[field] for field, _ in CSV_COLUMNS])
    return CSV_BOM + buffer.getvalue()
