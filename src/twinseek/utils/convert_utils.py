"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def score_to_percent(score: float) -> str:
        """
        Convert a 0-1 similarity score to a percentage string (e.g., 0.9731 -> '97.31%').
        """
        return f"{max(0.0, min(score, 1.0)) * 100:.2f}%"
