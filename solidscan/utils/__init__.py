"""Utility helpers for the analyzer."""

from .fileio import read_text_file, read_yaml_file, read_yaml_text
from .paths import MODEL_EXTENSIONS, iter_model_files

__all__ = [
    "read_yaml_file",
    "read_yaml_text",
    "read_text_file",
    "iter_model_files",
    "MODEL_EXTENSIONS",
]
