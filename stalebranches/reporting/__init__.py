from .reporter import export_report, log_totals, render, write_step_outputs

__all__ = ["export_report", "log_totals", "render", "write_step_outputs"]
