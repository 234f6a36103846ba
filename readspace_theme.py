"""ReadSpace theme for Gradio — paper backgrounds, ink text, one teal accent."""

from gradio.themes.base import Base
from gradio.themes.utils import colors, fonts, sizes


class ReadSpaceTheme(Base):
    """Light reading theme with a dark-mode counterpart.

    Color palette: warm paper neutrals, teal primary for actions and the
    calendar highlight, slate secondary.
    Typography: Source Serif 4 (body, for long-form reading), Inter (UI).
    """

    def __init__(self):
        reader_teal = colors.Color(
            name="reader_teal",
            c50="#effaf9", c100="#d5f1ee", c200="#aee3de", c300="#7ccfc7",
            c400="#4bb4ab", c500="#2f9990", c600="#247b74", c700="#1f625d",
            c800="#1c4f4b", c900="#1a423f", c950="#0a2624",
        )
        paper = colors.Color(
            name="paper",
            c50="#fbf9f4", c100="#f4f0e6", c200="#e7e0cf", c300="#d2c8b2",
            c400="#a99f8a", c500="#7f7766", c600="#5f584b", c700="#463f35",
            c800="#2e2a24", c900="#1d1a16", c950="#12100d",
        )

        super().__init__(
            primary_hue=reader_teal,
            secondary_hue=colors.slate,
            neutral_hue=paper,
            spacing_size=sizes.spacing_md,
            radius_size=sizes.radius_md,
            text_size=sizes.text_md,
            font=[
                fonts.GoogleFont("Source Serif 4"),
                "Georgia",
                "serif",
            ],
            font_mono=[
                fonts.GoogleFont("JetBrains Mono"),
                "ui-monospace",
                "monospace",
            ],
        )

        super().set(
            body_background_fill="*neutral_50",
            body_background_fill_dark="*neutral_950",
            block_background_fill="#ffffff",
            block_background_fill_dark="*neutral_900",
            block_border_color="*neutral_200",
            block_border_color_dark="*neutral_800",
            body_text_color="*neutral_800",
            body_text_color_dark="*neutral_100",
            button_primary_background_fill="*primary_600",
            button_primary_background_fill_dark="*primary_500",
            button_primary_background_fill_hover="*primary_500",
            button_primary_text_color="#ffffff",
            slider_color="*primary_500",
            link_text_color="*primary_700",
            link_text_color_dark="*primary_300",
            block_shadow="none",
        )


READSPACE_CSS = """
    /* Reader column: comfortable line length for long documents */
    #reader-body { max-width: 46rem; margin: 0 auto; line-height: 1.65; font-size: 1.05rem; }

    /* Calendar grid */
    .readspace-calendar { width: 100%; border-collapse: collapse; text-align: center; }
    .readspace-calendar th { font-family: 'Inter', sans-serif; font-size: 0.8rem; opacity: 0.7; }
    .readspace-calendar td { padding: 6px 0; border-radius: 6px; }
    .readspace-calendar td.has_activity { background: var(--primary-100); }
    .readspace-calendar td.today { outline: 2px solid var(--primary-500); }
    .readspace-calendar td.selected { background: var(--primary-500); color: #ffffff; }

    /* Project outline paths are hints, keep them quiet */
    #project-outline code { font-size: 0.75rem; opacity: 0.6; }

    footer { display: none !important; }
"""
