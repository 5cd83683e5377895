from polychart.adapters.normalize import series_from_frame, series_from_records

__all__ = ["series_from_frame", "series_from_records"]
