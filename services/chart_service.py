"""
services/chart_service.py
--------------------------
Generates chart images for the admin dashboard.
Uses matplotlib to create pie/bar charts and returns them as BytesIO buffers.
"""

import io

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt

from services.analytics_service import AnalyticsService
from utils.logger import get_logger

logger = get_logger(__name__)

plt.rcParams["font.family"] = "DejaVu Sans"
plt.rcParams["figure.facecolor"] = "#1a1a2e"
plt.rcParams["text.color"] = "#e0e0e0"
plt.rcParams["axes.facecolor"] = "#1a1a2e"

_STATUS_COLORS = {
    "pending": "#FFEAA7",
    "approved": "#4ECDC4",
    "rejected": "#FF6B6B",
    "cancelled": "#BB8FCE",
}
_ROLE_COLORS = ["#45B7D1", "#96CEB4", "#F7DC6F", "#DDA0DD"]


def _to_png(fig) -> io.BytesIO:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    buf.seek(0)
    plt.close(fig)
    return buf


class ChartService:
    """Renders dashboard statistics as images."""

    def __init__(self, analytics: AnalyticsService):
        self.analytics = analytics

    def events_by_status_pie(self) -> io.BytesIO | None:
        """
        Pie chart of events per moderation status.

        Returns:
            BytesIO buffer with PNG image, or None if there are no events.
        """
        by_status = self.analytics.get_dashboard_stats()["events"]["byStatus"]
        items = [(s, n) for s, n in by_status.items() if n > 0]
        if not items:
            return None

        labels = [s for s, _ in items]
        values = [n for _, n in items]

        fig, ax = plt.subplots(figsize=(8, 6))
        wedges, _, autotexts = ax.pie(
            values,
            labels=None,
            autopct=lambda pct: f"{pct:.1f}%",
            colors=[_STATUS_COLORS.get(s, "#85C1E9") for s in labels],
            startangle=90,
            pctdistance=0.82,
            wedgeprops=dict(width=0.5, edgecolor="#1a1a2e", linewidth=2),
        )
        for autotext in autotexts:
            autotext.set_color("#1a1a2e")
            autotext.set_fontsize(10)
            autotext.set_fontweight("bold")

        ax.legend(
            wedges, [f"{l}: {v}" for l, v in zip(labels, values)],
            loc="center left",
            bbox_to_anchor=(1, 0, 0.5, 1),
            fontsize=10,
            frameon=False,
        )
        ax.set_title(f"Events by status\nTotal: {sum(values)}", fontsize=14, fontweight="bold", pad=20)
        plt.tight_layout()

        logger.info("Generated events-by-status pie chart")
        return _to_png(fig)

    def users_by_role_bar(self) -> io.BytesIO | None:
        """Bar chart of accounts per role, or None if there are no users."""
        by_role = self.analytics.get_dashboard_stats()["users"]["byRole"]
        if not any(by_role.values()):
            return None

        roles = list(by_role.keys())
        counts = list(by_role.values())

        fig, ax = plt.subplots(figsize=(9, 5))
        bars = ax.bar(
            range(len(roles)), counts,
            color=_ROLE_COLORS[:len(roles)],
            edgecolor="#1a1a2e",
            linewidth=1.5,
            width=0.6,
            zorder=3,
        )
        for bar, count in zip(bars, counts):
            ax.text(
                bar.get_x() + bar.get_width() / 2, bar.get_height() + 0.1,
                str(count),
                ha="center", va="bottom",
                color="#e0e0e0", fontsize=10, fontweight="bold",
            )

        ax.set_xticks(range(len(roles)))
        ax.set_xticklabels([r.replace("_", "\n") for r in roles], fontsize=9, color="#e0e0e0")
        ax.set_ylabel("Users", fontsize=11, color="#e0e0e0")
        ax.set_title(f"Users by role\nTotal: {sum(counts)}", fontsize=13, fontweight="bold", pad=15)

        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        ax.spines["left"].set_color("#444")
        ax.spines["bottom"].set_color("#444")
        ax.tick_params(colors="#e0e0e0")
        ax.grid(axis="y", alpha=0.2, color="#888")
        ax.set_axisbelow(True)
        plt.tight_layout()

        logger.info("Generated users-by-role bar chart")
        return _to_png(fig)
