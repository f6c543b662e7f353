from .planogram_visualizer import PlanogramVisualizer
from .export_handler import ExportHandler

__all__ = ['PlanogramVisualizer', 'ExportHandler']
