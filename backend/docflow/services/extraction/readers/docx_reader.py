import io

from docx import Document as DocxDocument


def docx_to_text(data: bytes) -> str:
    """Convert a .docx body to plain text: paragraphs first, then tables."""
    doc = DocxDocument(io.BytesIO(data))

    paragraphs = [para.text for para in doc.paragraphs if para.text.strip()]
    full_text = "\n".join(paragraphs)

    for table_idx, table in enumerate(doc.tables):
        rows = [
            " | ".join(cell.text.strip() for cell in row.cells)
            for row in table.rows
        ]
        if rows:
            full_text += f"\n\n[Table {table_idx + 1}]\n" + "\n".join(rows)

    return full_text.strip()
