from .record_table_model import RecordTableModel

__all__ = ["RecordTableModel"]
