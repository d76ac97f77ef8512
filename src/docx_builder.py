"""DOCX rendering of a proposal with python-docx"""
import io
import time
import random
import logging
from pathlib import Path
from typing import Iterable, Optional
from docx import Document
from docx.enum.table import WD_CELL_VERTICAL_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import RGBColor
from src.config import Config

logger = logging.getLogger(__name__)

DOCUMENT_TITLE = "Технико-коммерческое предложение"
TABLE_HEADERS = ("Наименование", "Кол-во", "Цена за шт.", "Сумма")

TITLE_PLACEHOLDER = "{document_title}"
ORDER_ID_PLACEHOLDER = "{order_id}"
TOTAL_PRICE_PLACEHOLDER = "{total_price}"
TABLE_PLACEHOLDER = "{components_table}"


class DocxBuildError(Exception):
    """Raised when the proposal document cannot be rendered"""


def format_rubles(amount: int) -> str:
    return f"{amount} руб."


def generate_order_id() -> str:
    return f"{int(time.time())}-{random.randint(0, 999)}"


def _default_template() -> Document:
    """Layout used when no template.docx is present"""
    doc = Document()
    doc.add_heading(TITLE_PLACEHOLDER, level=1)
    doc.add_paragraph(f"Номер предложения: {ORDER_ID_PLACEHOLDER}")
    doc.add_paragraph(TABLE_PLACEHOLDER)
    doc.add_paragraph(f"Итоговая стоимость: {TOTAL_PRICE_PLACEHOLDER}")
    return doc


def _replace_in_paragraphs(paragraphs, old: str, new: str) -> None:
    for paragraph in paragraphs:
        for run in paragraph.runs:
            if old in run.text:
                run.text = run.text.replace(old, new)


def replace_all_text(doc: Document, old: str, new: str) -> None:
    """Replace a placeholder in body paragraphs, headers and footers"""
    _replace_in_paragraphs(doc.paragraphs, old, new)
    for section in doc.sections:
        _replace_in_paragraphs(section.header.paragraphs, old, new)
        _replace_in_paragraphs(section.footer.paragraphs, old, new)


def _set_table_layout(table) -> None:
    """Full page width and single borders on every edge"""
    tbl_pr = table._tbl.tblPr

    width = tbl_pr.find(qn('w:tblW'))
    if width is None:
        width = OxmlElement('w:tblW')
        tbl_pr.append(width)
    width.set(qn('w:type'), 'pct')
    width.set(qn('w:w'), '5000')

    borders = OxmlElement('w:tblBorders')
    for edge in ('top', 'left', 'bottom', 'right', 'insideH', 'insideV'):
        element = OxmlElement(f'w:{edge}')
        element.set(qn('w:val'), 'single')
        element.set(qn('w:sz'), '8')  # eighths of a point
        element.set(qn('w:space'), '0')
        element.set(qn('w:color'), 'auto')
        borders.append(element)

    # tblBorders must precede tblLook in tblPr
    look = tbl_pr.find(qn('w:tblLook'))
    if look is not None:
        look.addprevious(borders)
    else:
        tbl_pr.append(borders)


def _write_cell(cell, text: str, bold: bool = False, alignment=None):
    paragraph = cell.paragraphs[0]
    if alignment is not None:
        paragraph.alignment = alignment
    run = paragraph.add_run(text)
    if bold:
        run.bold = True
    return run


class DocxBuilder:
    """Fills the proposal template and inserts the components table"""

    def __init__(self, template_path: Optional[Path] = Config.TEMPLATE_PATH):
        self.template_path = Path(template_path) if template_path else None

    def _open_template(self) -> Document:
        if self.template_path is None or not self.template_path.exists():
            logger.warning(f"Шаблон '{self.template_path}' не найден, используется макет по умолчанию")
            return _default_template()
        try:
            return Document(str(self.template_path))
        except Exception as e:
            raise DocxBuildError(f"ошибка открытия {self.template_path.name}: {e}") from e

    def build(self, items: Iterable, total_cost: int, order_id: Optional[str] = None) -> bytes:
        """Render the document and return its bytes

        Args:
            items: objects with name, quantity, price and subtotal
            total_cost: sum of the subtotals
            order_id: proposal number; generated from the clock when omitted
        """
        doc = self._open_template()

        replace_all_text(doc, TITLE_PLACEHOLDER, DOCUMENT_TITLE)
        replace_all_text(doc, ORDER_ID_PLACEHOLDER, order_id or generate_order_id())
        replace_all_text(doc, TOTAL_PRICE_PLACEHOLDER, format_rubles(total_cost))

        table_paragraph = next((p for p in doc.paragraphs if TABLE_PLACEHOLDER in p.text), None)
        if table_paragraph is None:
            raise DocxBuildError(f"плейсхолдер {TABLE_PLACEHOLDER} не найден в шаблоне")

        for run in list(table_paragraph.runs):
            run._r.getparent().remove(run._r)

        table = doc.add_table(rows=0, cols=len(TABLE_HEADERS))
        _set_table_layout(table)

        header_cells = table.add_row().cells
        for cell, header in zip(header_cells, TABLE_HEADERS):
            cell.vertical_alignment = WD_CELL_VERTICAL_ALIGNMENT.CENTER
            run = _write_cell(cell, header, bold=True, alignment=WD_ALIGN_PARAGRAPH.CENTER)
            run.font.color.rgb = RGBColor(0, 0, 0)

        for item in items:
            cells = table.add_row().cells
            _write_cell(cells[0], item.name)
            _write_cell(cells[1], str(item.quantity))
            _write_cell(cells[2], format_rubles(item.price))
            _write_cell(cells[3], format_rubles(item.subtotal))

        total_cells = table.add_row().cells
        label_cell = total_cells[0].merge(total_cells[2])
        _write_cell(label_cell, "Итого:", bold=True, alignment=WD_ALIGN_PARAGRAPH.RIGHT)
        _write_cell(total_cells[3], format_rubles(total_cost), bold=True)

        # add_table appends to the body; move the table to the placeholder
        table_paragraph._p.addnext(table._tbl)

        buffer = io.BytesIO()
        try:
            doc.save(buffer)
        except Exception as e:
            raise DocxBuildError(f"ошибка сохранения docx в буфер: {e}") from e
        return buffer.getvalue()
