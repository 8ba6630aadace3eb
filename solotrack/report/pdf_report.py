from __future__ import annotations

from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from solotrack.core.currency import Caution, CurrencyState, Expired, Valid, expires_on
from solotrack.core.pipeline import PipelineResult
from solotrack.core.status import LogbookStatus, status_verdict

STATE_COLORS = {
    "valid": colors.HexColor("#2E7D32"),
    "caution": colors.HexColor("#F9A825"),
    "expired": colors.HexColor("#C62828"),
}


def _state_color(state: CurrencyState) -> colors.Color:
    match state:
        case Valid():
            return STATE_COLORS["valid"]
        case Caution():
            return STATE_COLORS["caution"]
        case Expired():
            return STATE_COLORS["expired"]
    return colors.black


def _wrap_lines(c: canvas.Canvas, text: str, max_width: float, font_name: str, font_size: int) -> list[str]:
    c.setFont(font_name, font_size)
    words = (text or "").split()
    if not words:
        return [""]

    lines: list[str] = []
    current = words[0]
    for w in words[1:]:
        test = f"{current} {w}"
        if c.stringWidth(test, font_name, font_size) <= max_width:
            current = test
        else:
            lines.append(current)
            current = w
    lines.append(current)
    return lines


def _draw_wrapped(
    c: canvas.Canvas,
    x: float,
    y: float,
    text: str,
    max_width: float,
    line_height: int = 13,
    font_name: str = "Helvetica",
    font_size: int = 10,
) -> float:
    lines = _wrap_lines(c, text, max_width, font_name, font_size)
    c.setFont(font_name, font_size)
    for line in lines:
        c.drawString(x, y, line)
        y -= line_height
    return y


def _draw_progress_bar(c: canvas.Canvas, x: float, y: float, w: float, h: float, progress: float, met: bool) -> None:
    """0..1 horizontal bar; y is the text baseline of the row."""
    p = max(0.0, min(float(progress), 1.0))
    c.setLineWidth(0.5)
    c.setStrokeColor(colors.grey)
    c.setFillColor(colors.whitesmoke)
    c.rect(x, y - 1, w, h, stroke=1, fill=1)
    if p > 0:
        c.setFillColor(STATE_COLORS["valid"] if met else colors.HexColor("#1565C0"))
        c.rect(x, y - 1, w * p, h, stroke=0, fill=1)
    c.setFillColor(colors.black)
    c.setStrokeColor(colors.black)


def _draw_currency_card(
    c: canvas.Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    name: str,
    state: CurrencyState,
    status: LogbookStatus,
) -> None:
    """Card with a colored status stripe; y is the card's top edge."""
    c.setLineWidth(0.6)
    c.rect(x, y - h, w, h, stroke=1, fill=0)

    c.setFillColor(_state_color(state))
    c.rect(x, y - h, 6, h, stroke=0, fill=1)
    c.setFillColor(colors.black)

    c.setFont("Helvetica-Bold", 12)
    c.drawString(x + 14, y - 18, f"{name} Currency")

    c.setFont("Helvetica", 10)
    c.drawString(x + 14, y - 34, state.label)

    exp = expires_on(state, status.as_of)
    legal = "Legal to carry passengers" if state.is_legal else "Not legal to carry passengers"
    c.drawString(x + 14, y - 48, legal)
    if exp is not None:
        c.drawString(x + 14, y - 62, f"Expires {exp.strftime('%b %d, %Y')}")


def _draw_footer(
    c: canvas.Canvas,
    page_w: float,
    y: float,
    text: str,
    left: float,
    right: float,
) -> None:
    c.setFont("Helvetica", 8)
    c.drawRightString(page_w - right, y, text)
    c.drawString(left, y, "SoloTrack · Logbook Status")


def write_pdf_report(
    out_path: str | Path,
    status: LogbookStatus,
    stage_title: str,
    result: PipelineResult | None,
    generated_at: str | None,
    notes: list[str] | None = None,
    run_config: dict[str, str] | None = None,
    show_requirements: bool = True,
) -> Path:

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(out_path), pagesize=letter)
    page_w, page_h = letter

    left = 40
    right = 44
    max_width = page_w - left - right

    def ensure_room(y: float, needed: float) -> float:
        if y >= needed + 60:
            return y
        _draw_footer(c, page_w, 24, f"As of {status.as_of.isoformat()}", left, right)
        c.showPage()
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, page_h - 60, "SoloTrack — Logbook Status (cont.)")
        return page_h - 84

    # ======================
    # HEADER
    # ======================
    y = page_h - 60
    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, y, "SoloTrack — Logbook Status")
    y -= 24

    c.setFont("Helvetica", 10)
    if generated_at:
        c.drawString(left, y, f"Generated: {generated_at}")
        y -= 14
    last = status.last_flight.isoformat() if status.last_flight else "N/A"
    c.drawString(
        left,
        y,
        f"As of {status.as_of.isoformat()} | Stage: {stage_title} | Flights: {status.flight_count} | "
        f"Total: {status.total_hours:.1f} h | Last flight: {last}",
    )
    y -= 22

    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, "Verdict")
    y -= 16
    y = _draw_wrapped(c, left, y, status_verdict(status), max_width, line_height=14, font_name="Helvetica", font_size=11)
    y -= 10

    # ======================
    # CURRENCY CARDS
    # ======================
    card_w = (max_width - 16) / 2
    card_h = 72
    _draw_currency_card(c, left, y, card_w, card_h, "Day", status.day, status)
    _draw_currency_card(c, left + card_w + 16, y, card_w, card_h, "Night", status.night, status)
    y -= card_h + 24

    # ======================
    # PPL REQUIREMENTS
    # ======================
    if show_requirements:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, y, f"PPL Requirements ({status.requirements_met}/{len(status.requirements)} met, "
                              f"{status.overall_progress * 100:.0f}% overall)")
        y -= 18

        COL = {"title": left, "far": left + 150, "bar": left + 240, "hours": left + 400}
        c.setFont("Helvetica-Bold", 9)
        c.drawString(COL["title"], y, "Requirement")
        c.drawString(COL["far"], y, "FAR")
        c.drawString(COL["bar"], y, "Progress")
        c.drawString(COL["hours"], y, "Hours")
        y -= 14

        for r in status.requirements:
            y = ensure_room(y, 20)
            c.setFont("Helvetica", 9)
            c.drawString(COL["title"], y, r.title)
            c.drawString(COL["far"], y, r.key)
            _draw_progress_bar(c, COL["bar"], y, 140, 8, r.progress, r.is_met)
            c.setFont("Helvetica", 9)
            c.drawString(COL["hours"], y, f"{r.formatted_progress}  ({r.formatted_remaining})")
            y -= 16

        y -= 10

    # ======================
    # NOTIFICATIONS
    # ======================
    result = result or PipelineResult()

    y = ensure_room(y, 40)
    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, "Notifications")
    y -= 16

    if not result.delivered and not result.blocked:
        c.setFont("Helvetica", 10)
        c.drawString(left, y, "No high-value notifications right now.")
        y -= 14

    for s in result.delivered:
        y = ensure_room(y, 30)
        y = _draw_wrapped(
            c, left, y, f"• [{s.score:.2f}] {s.title}", max_width,
            line_height=13, font_name="Helvetica-Bold", font_size=10,
        )
        y = _draw_wrapped(c, left + 12, y, s.body, max_width - 12, line_height=13, font_name="Helvetica", font_size=10)
        y -= 4

    if result.blocked:
        y = ensure_room(y, 30)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(left, y, "Held back by rate limits")
        y -= 14
        for b in result.blocked:
            y = ensure_room(y, 14)
            y = _draw_wrapped(
                c, left, y, f"- [{b.scored.score:.2f}] {b.scored.title} ({b.gate})", max_width,
                line_height=12, font_name="Helvetica", font_size=9,
            )

    if notes:
        y -= 10
        y = ensure_room(y, 30)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, y, "Data Notes")
        y -= 14
        for n in notes:
            y = ensure_room(y, 14)
            y = _draw_wrapped(c, left, y, f"- {n}", max_width, line_height=13, font_name="Helvetica", font_size=10)

    _draw_footer(
        c,
        page_w,
        24,
        f"Version {run_config.get('version', '')}" if run_config else "",
        left,
        right,
    )

    c.save()
    return out_path
