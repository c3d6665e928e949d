from __future__ import annotations

from pathlib import Path

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill

from student_import.models.config_models import DEFAULT_EXPECTED_HEADERS

"""Import template generation.

Writes the workbook users fill in before an import: the header row, a few
sample students and, optionally, the filling instructions. Instructions must be
deleted before the file is imported, otherwise each line is reported as an
invalid row.
"""

__all__ = [
    "SHEET_NAME",
    "SAMPLE_ROWS",
    "INSTRUCTION_LINES",
    "write_template",
]

SHEET_NAME = "Template Data Siswa"

SAMPLE_ROWS: list[list[str]] = [
    ["12345", "Ahmad Rizki", "7A", "Laki-laki"],
    ["12346", "Siti Nurhaliza", "7B", "Perempuan"],
    ["12347", "Budi Santoso", "8A", "Laki-laki"],
    ["12348", "Dewi Sartika", "8B", "Perempuan"],
    ["12349", "Andi Pratama", "9A", "Laki-laki"],
    ["12350", "Maya Sari", "9C", "Perempuan"],
]

INSTRUCTION_LINES: list[str] = [
    "PETUNJUK PENGISIAN:",
    "1. NIS: Nomor Induk Siswa (harus angka)",
    "2. Nama Lengkap: Nama siswa (minimal 2 karakter)",
    "3. Kelas: Nama kelas (contoh: 7A, 8B, 9C)",
    "4. Jenis Kelamin: Laki-laki atau Perempuan",
    "   - Bisa juga menggunakan L atau P",
    "",
    "CATATAN PENTING:",
    "- Pastikan format header sesuai dengan template",
    "- Hapus baris petunjuk ini sebelum import",
    "- Maksimal ukuran file 5MB",
    "- Format file harus .xlsx atau .xls",
]

COLUMN_WIDTHS = {"A": 15, "B": 25, "C": 10, "D": 15}
HEADER_FILL = "366092"


def write_template(path: Path, include_instructions: bool = True) -> Path:
    """Write the import template workbook to ``path`` and return it."""
    rows: list[list[str]] = [list(DEFAULT_EXPECTED_HEADERS), *SAMPLE_ROWS]
    if include_instructions:
        rows.append(["", "", "", ""])
        rows.extend([line, "", "", ""] for line in INSTRUCTION_LINES)

    df = pd.DataFrame(rows)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, header=False, index=False)
        ws = writer.sheets[SHEET_NAME]
        for col, width in COLUMN_WIDTHS.items():
            ws.column_dimensions[col].width = width
        for cell in ws[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)
            cell.alignment = Alignment(horizontal="center")
    return path
