"""
Photo Restoration Pipeline

  Upload   fal storage
  Restore  FLUX Kontext colorization / enhancement
  Animate  Kling image-to-video
  Workflow client-side controller sequencing the three stages
"""

from .animate import AnimationGateway
from .client import RestoreFlowClient
from .models import Stage, WorkflowState
from .orchestrator import RestorationWorkflow
from .restore import RestorationGateway
from .routes import pipeline_router
from .upload import UploadGateway

__all__ = [
    "AnimationGateway",
    "RestorationGateway",
    "RestorationWorkflow",
    "RestoreFlowClient",
    "Stage",
    "UploadGateway",
    "WorkflowState",
    "pipeline_router",
]
