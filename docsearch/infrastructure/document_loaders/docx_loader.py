from pathlib import Path

from docx import Document as DocxDocument

from .base import LoadedFile

_CORE_PROPERTIES = ("title", "author", "subject", "keywords")


class DocxLoader:
    """Extracts paragraphs, table cells and core properties from .docx files."""

    extensions = frozenset({".docx"})

    def read(self, file_path: Path) -> LoadedFile:
        docx = DocxDocument(file_path)

        blocks = [p.text.strip() for p in docx.paragraphs if p.text.strip()]
        for table in docx.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    blocks.append(" | ".join(cells))

        props = docx.core_properties
        metadata = {
            prop.capitalize(): str(getattr(props, prop))
            for prop in _CORE_PROPERTIES
            if getattr(props, prop)
        }
        return LoadedFile(text="\n\n".join(blocks), metadata=metadata)
