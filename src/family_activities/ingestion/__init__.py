"""
Ingestion: text segmentation, field extraction and schema normalization.
"""
