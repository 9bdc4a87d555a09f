"""
PosterForge I/O Module

Handles design documents, asset ingestion and export.
"""

from .assets import AssetDecoder, decode_image_bytes, encode_data_url, parse_data_url
from .asset_importer import AssetImporter, ImportResult
from .project_io import (
    LoadResult, document_to_dict, load_document, load_project, save_project
)
from .export import export_raster, export_vector, export_raster_file, export_vector_file

__all__ = [
    'AssetDecoder', 'decode_image_bytes', 'encode_data_url', 'parse_data_url',
    'AssetImporter', 'ImportResult',
    'LoadResult', 'document_to_dict', 'load_document', 'load_project', 'save_project',
    'export_raster', 'export_vector', 'export_raster_file', 'export_vector_file',
]
