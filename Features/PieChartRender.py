import io
import math
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Wedge

PALETTE = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40", "#C9CBCF"]

# labels sit at this fraction of the radius, along the slice's midpoint
LABEL_RADIUS_FACTOR = 0.6


def compute_pie_slices(tally: dict, size: int = 300) -> list:
    """
    Lays out one slice per tally entry on a square canvas of side `size`.

    Angles are in radians, starting at 0 and advancing in the tally's own
    order. Coordinates follow canvas convention (origin top-left, y down),
    so increasing angles run clockwise on screen.

    An empty tally yields no slices.
    """
    total = sum(tally.values())
    if total == 0:
        return []

    center = size / 2
    radius = size / 2
    slices = []
    start_angle = 0.0
    for i, (content_type, count) in enumerate(tally.items()):
        slice_angle = (count / total) * 2 * math.pi
        end_angle = start_angle + slice_angle
        mid_angle = start_angle + slice_angle / 2
        slices.append({
            "content_type": content_type,
            "count": count,
            "start_angle": start_angle,
            "end_angle": end_angle,
            "color": PALETTE[i % len(PALETTE)],
            "label": f"{content_type} ({count})",
            "label_x": center + LABEL_RADIUS_FACTOR * radius * math.cos(mid_angle),
            "label_y": center + LABEL_RADIUS_FACTOR * radius * math.sin(mid_angle),
        })
        start_angle = end_angle
    return slices


def render_pie_chart(tally: dict, size: int = 300) -> bytes:
    """Draws the compressed-type tally as a PNG pie chart of `size` x `size` pixels."""
    dpi = 100
    # not registered with pyplot
    fig = Figure(figsize=(size / dpi, size / dpi), dpi=dpi)
    FigureCanvasAgg(fig)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, size)
    ax.set_ylim(size, 0)
    ax.set_aspect("equal")
    ax.axis("off")

    center = (size / 2, size / 2)
    for s in compute_pie_slices(tally, size):
        ax.add_patch(Wedge(
            center, size / 2,
            math.degrees(s["start_angle"]), math.degrees(s["end_angle"]),
            facecolor=s["color"],
        ))
        ax.text(s["label_x"], s["label_y"], s["label"], ha="center", va="center", fontsize=7)

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=dpi, transparent=True)
    return buffer.getvalue()


def save_pie_chart(tally: dict, filepath: str, size: int = 300) -> str:
    with open(filepath, "wb") as f:
        f.write(render_pie_chart(tally, size))
    return filepath


# Standalone execution block for testing
if __name__ == '__main__':
    test_tally = {"application/javascript": 3, "text/css": 2, "text/html": 1}
    for piece in compute_pie_slices(test_tally):
        print(piece["label"], round(piece["start_angle"], 3), round(piece["end_angle"], 3))
    print(f"Chart written to {save_pie_chart(test_tally, 'pie_chart_test.png')}")
