import io

import pandas as pd


def read_workbook(data: bytes, filename: str = "") -> dict[str, pd.DataFrame]:
    """Load every sheet of an .xlsx/.xls workbook, in workbook order.

    Cells are read as strings without a header row so the CSV rendering
    reproduces the sheet exactly as typed.
    """
    engine = "xlrd" if filename.lower().endswith(".xls") else None
    return pd.read_excel(
        io.BytesIO(data),
        sheet_name=None,
        header=None,
        dtype=str,
        keep_default_na=False,
        engine=engine,
    )


def sheet_to_csv(df: pd.DataFrame) -> str:
    if df.empty:
        return ""
    return df.to_csv(index=False, header=False, lineterminator="\n").rstrip("\n")
