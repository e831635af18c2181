import base64
import html

from models import CompressionReport

PANEL_TITLE = "Compression Inspector"
PANEL_DISCLAIMER = (
    "Only same-origin resources are checked. Requests that failed at the network "
    "level are left out, and compression is read from the Content-Encoding header only."
)

MOUNTED = "mounted"
REMOVED = "removed"


class CompressionPanel:
    """
    Summary panel for one analysis run.

    It starts mounted; dismiss() removes it for good. Showing results
    again means running a new analysis and building a new panel.
    """

    def __init__(self, report: CompressionReport, chart_png: bytes):
        self.title = PANEL_TITLE
        self.ratio = report.ratio
        self.compressed_count = len(report.compressed)
        self.compressible_count = len(report.compressible)
        self.chart_png = chart_png
        self.disclaimer = PANEL_DISCLAIMER
        self.state = MOUNTED

    @property
    def is_mounted(self) -> bool:
        return self.state == MOUNTED

    @property
    def ratio_text(self) -> str:
        return f"{self.ratio}%"

    def dismiss(self):
        self.state = REMOVED

    def chart_data_uri(self) -> str:
        encoded = base64.b64encode(self.chart_png).decode("ascii")
        return f"data:image/png;base64,{encoded}"


def build_panel(report: CompressionReport, chart_png: bytes) -> CompressionPanel:
    return CompressionPanel(report, chart_png)


def render_panel_html(panel: CompressionPanel) -> str:
    """Fixed-position overlay for the bottom-right corner of the viewport."""
    if not panel.is_mounted:
        return ""

    return f"""<div id="compression-inspector-panel" style="position:fixed;bottom:16px;right:16px;z-index:2147483647;
background:#fff;color:#222;border:1px solid #ccc;border-radius:8px;padding:12px;width:324px;
font:13px/1.4 sans-serif;box-shadow:0 4px 16px rgba(0,0,0,.2)">
  <button type="button" aria-label="Dismiss" style="float:right;border:none;background:none;font-size:16px;cursor:pointer"
    onclick="document.getElementById('compression-inspector-panel').remove()">&times;</button>
  <h3 style="margin:0 0 8px">{html.escape(panel.title)}</h3>
  <p style="margin:0 0 8px">Compressed: <strong>{html.escape(panel.ratio_text)}</strong>
    ({panel.compressed_count}/{panel.compressible_count} compressible resources)</p>
  <img src="{panel.chart_data_uri()}" alt="Compressed resources by content type" width="300" height="300">
  <p style="margin:8px 0 0;font-size:11px;color:#666">{html.escape(panel.disclaimer)}</p>
</div>"""
