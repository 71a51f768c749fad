"""
Unfurl Asana task URLs in pull request descriptions.

Plain Asana URLs become markdown links labelled with the task title, and
existing Asana markdown links are reconciled with the current title.
"""

from .services.task_id_extractor import extract_task_ids
from .services.body_transformer import transform_pr_body, TransformResult

__version__ = "1.0.0"

__all__ = ['extract_task_ids', 'transform_pr_body', 'TransformResult', '__version__']
