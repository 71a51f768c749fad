from .task_id_extractor import extract_task_ids
from .body_transformer import transform_pr_body, TransformResult, TaskInfo

__all__ = ['extract_task_ids', 'transform_pr_body', 'TransformResult', 'TaskInfo']
