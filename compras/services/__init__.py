from .dashboard import ReviewDashboard
from .export import ExportFile, export_purchases
from .submission import ReceiptFile, SubmissionForm

__all__ = [
    "ReviewDashboard",
    "ExportFile",
    "export_purchases",
    "ReceiptFile",
    "SubmissionForm",
]
