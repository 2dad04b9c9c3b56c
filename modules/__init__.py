"""Label generation and print layout modules for Label Station."""

__all__ = [
    "barcode_encoder",
    "label_renderer",
    "page_planner",
    "print_pipeline",
    "print_surfaces",
    "units",
]
