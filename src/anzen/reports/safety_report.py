"""Render a matched category and its suggestions into a PDF safety report."""

from __future__ import annotations

import logging
import re
import time
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence
from xml.sax.saxutils import escape

from google.cloud import storage
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import HRFlowable, PageBreak, Paragraph, SimpleDocTemplate, Spacer

from anzen.errors import CategoryNotFoundError
from anzen.settings import Settings, get_settings
from anzen.store.categories import CategoryRepository

LOGGER = logging.getLogger(__name__)

SUGGESTIONS_PER_PAGE = 4
ATTRIBUTION = "「職場のあんぜんサイト」（厚生労働省）を加工して作成"

REPORT_LABELS: Dict[str, Dict[str, str]] = {
    "ja": {"title": "【安全報告書】", "task": "■ 作業内容:", "measures": "実施すべき対策", "suggestions": "Geminiからの追加提案"},
    "en": {
        "title": "【Safety Report】",
        "task": "■ Work Task:",
        "measures": "Measures to be Taken",
        "suggestions": "Additional Suggestions from Gemini",
    },
    "bn": {
        "title": "【নিরাপত্তা প্রতিবেদন】",
        "task": "■ কাজের বিবরণ:",
        "measures": "গ্রহণযোগ্য পদক্ষেপ",
        "suggestions": "Gemini থেকে অতিরিক্ত পরামর্শ",
    },
    "zh": {"title": "【安全报告】", "task": "■ 工作内容:", "measures": "应采取的措施", "suggestions": "来自Gemini的额外建议"},
}

# CJK text needs a CID font; everything else uses the built-in Helvetica.
_CID_FONTS = {"ja": "HeiseiKakuGo-W5", "zh": "STSong-Light"}
_BRACKETED = re.compile(r"【.*?】")


def _font_for(lang: str) -> str:
    font_name = _CID_FONTS.get(lang)
    if font_name is None:
        return "Helvetica"
    if font_name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(font_name))
    return font_name


def _clean(text: str) -> str:
    return _BRACKETED.sub("", text).strip()


def render_safety_report(
    *,
    title: str,
    user_query: str,
    category_name: str,
    description: str,
    measures: Sequence[str],
    suggestions: Sequence[str],
    lang: str,
) -> bytes:
    """Return PDF bytes: overview and measures first, then suggestions four per page."""

    labels = REPORT_LABELS.get(lang, REPORT_LABELS["ja"])
    font = _font_for(lang)
    styles = getSampleStyleSheet()
    heading1 = ParagraphStyle("ReportTitle", parent=styles["Title"], fontName=font)
    heading2 = ParagraphStyle("ReportHeading", parent=styles["Heading2"], fontName=font)
    body = ParagraphStyle("ReportBody", parent=styles["BodyText"], fontName=font, leading=16)
    item = ParagraphStyle("ReportItem", parent=body, leftIndent=12, spaceAfter=10)

    story: List[Any] = [
        Paragraph(escape(title or labels["title"]), heading1),
        Paragraph(f"{escape(labels['task'])} {escape(user_query)}", body),
        HRFlowable(width="100%", color=colors.lightgrey),
        Spacer(1, 12),
        Paragraph(escape(category_name), heading2),
        Paragraph(escape(description), body),
        Spacer(1, 12),
        Paragraph(escape(labels["measures"]), heading2),
    ]
    story.extend(Paragraph(f"{index}. {escape(text)}", item) for index, text in enumerate(measures, start=1))

    for start in range(0, len(suggestions), SUGGESTIONS_PER_PAGE):
        story.append(PageBreak())
        story.append(Paragraph(escape(labels["suggestions"]), heading2))
        chunk = suggestions[start : start + SUGGESTIONS_PER_PAGE]
        story.extend(Paragraph(f"• {escape(text)}", item) for text in chunk)

    def _footer(canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont(_font_for("ja"), 8)
        canvas.setFillColor(colors.grey)
        canvas.drawString(doc.leftMargin, 30, ATTRIBUTION)
        canvas.restoreState()

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=40, bottomMargin=60, leftMargin=40, rightMargin=40)
    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buffer.getvalue()


class SafetyReportBuilder:
    """Build a report for one category and publish it.

    With ``storage.reports_bucket`` configured the PDF is uploaded under
    ``reports/`` and its public URL returned; otherwise it is written to
    ``storage.reports_local_dir`` and the local path is returned.
    """

    def __init__(
        self,
        *,
        categories: CategoryRepository,
        settings: Settings | None = None,
        bucket: Any | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.categories = categories
        self.settings = settings or get_settings()
        self._clock = clock
        storage_settings = self.settings.storage
        if bucket is not None:
            self._bucket = bucket
        elif storage_settings.reports_bucket:
            client = storage.Client(project=storage_settings.firestore_project)
            self._bucket = client.bucket(storage_settings.reports_bucket)
        else:
            self._bucket = None
        self.local_dir = Path(storage_settings.reports_local_dir)

    def build(
        self,
        category_id: str,
        *,
        user_query: str,
        suggestions: Sequence[str] = (),
        lang: str = "ja",
    ) -> str:
        """Render and publish the report, returning its URL or local path.

        Raises:
            CategoryNotFoundError: If ``category_id`` does not exist.
        """

        category = self.categories.get(category_id)
        if category is None:
            raise CategoryNotFoundError(f"Category {category_id} not found")

        base = self.settings.base_language
        localized = category.localized(lang, base)
        measures = [cleaned for cleaned in (_clean(text) for text in localized.measures) if cleaned]
        extra = [cleaned for cleaned in (_clean(text) for text in suggestions) if cleaned]
        pdf_bytes = render_safety_report(
            title=REPORT_LABELS.get(lang, REPORT_LABELS["ja"])["title"],
            user_query=user_query,
            category_name=localized.name,
            description=localized.description,
            measures=measures,
            suggestions=extra,
            lang=lang,
        )
        filename = f"{category_id}_{int(self._clock() * 1000)}.pdf"
        return self._publish(filename, pdf_bytes)

    def _publish(self, filename: str, pdf_bytes: bytes) -> str:
        if self._bucket is not None:
            blob = self._bucket.blob(f"reports/{filename}")
            blob.upload_from_string(pdf_bytes, content_type="application/pdf")
            LOGGER.info("Uploaded safety report reports/%s", filename)
            return blob.public_url

        self.local_dir.mkdir(parents=True, exist_ok=True)
        path = self.local_dir / filename
        path.write_bytes(pdf_bytes)
        LOGGER.info("Wrote safety report to %s", path)
        return str(path)


__all__ = ["REPORT_LABELS", "SafetyReportBuilder", "render_safety_report"]
