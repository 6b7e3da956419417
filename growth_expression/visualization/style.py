"""
Publication-ready plotting style configuration.
"""

from typing import Any, Dict, Iterable, Optional

import seaborn as sns

DEFAULT_NUTRIENT_COLORS = {
    "Glucose": "#3498db",
    "Leucine": "#e74c3c",
    "Phosphate": "#2ecc71",
    "Sulfate": "#f1c40f",
    "Ammonia": "#9b59b6",
    "Uracil": "#e67e22",
}


DEFAULT_FONT_SIZES = {"title": 12, "label": 11, "tick": 10, "legend": 9}

# rcParams keys driven by each entry of viz_params["font_sizes"]
FONT_SIZE_KEYS = {
    "title": ["axes.titlesize", "figure.titlesize"],
    "label": ["axes.labelsize"],
    "tick": ["font.size", "xtick.labelsize", "ytick.labelsize"],
    "legend": ["legend.fontsize", "legend.title_fontsize"],
}


def setup_publication_style(config: Optional[Any] = None) -> None:
    """
    Apply a seaborn "ticks" theme sized from the configured fonts and dpi.

    Args:
        config: Optional configuration object with viz_params
    """
    viz = getattr(config, "viz_params", {}) if config is not None else {}
    sizes = {**DEFAULT_FONT_SIZES, **viz.get("font_sizes", {})}
    dpi = viz.get("dpi", 300)

    rc = {key: sizes[name] for name, keys in FONT_SIZE_KEYS.items() for key in keys}
    rc.update({
        "figure.dpi": dpi,
        "savefig.dpi": dpi,
        "savefig.bbox": "tight",
        "axes.spines.top": False,
        "axes.spines.right": False,
        # Embed TrueType so PDF text stays editable
        "pdf.fonttype": 42,
    })

    sns.set_theme(style="ticks", context="paper", rc=rc)


def get_color_palette(
    config: Optional[Any] = None,
    nutrients: Optional[Iterable[str]] = None
) -> Dict[str, str]:
    """
    Get consistent nutrient color palette for plots.

    Nutrients without a configured color get one from seaborn's default
    qualitative palette.

    Args:
        config: Optional configuration object
        nutrients: Nutrient names that must be present in the palette

    Returns:
        Dictionary mapping nutrient names to hex colors
    """
    colors = dict(DEFAULT_NUTRIENT_COLORS)

    if config is not None and hasattr(config, "viz_params"):
        colors.update(config.viz_params.get("colors", {}))

    if nutrients is not None:
        missing = [n for n in nutrients if n not in colors]
        extra = sns.color_palette("tab10", len(missing)).as_hex() if missing else []
        colors.update(zip(missing, extra))

    return colors
