"""
Data Ingestion - Extractors Package.

Extractors locate structured regions inside fetched documents.

Extractors:
- table_extractor: Market Summary date and equity table rows
"""

from data_ingestion.extractors.table_extractor import TableExtractor, clean_cell_text


__all__ = [
    "TableExtractor",
    "clean_cell_text",
]
