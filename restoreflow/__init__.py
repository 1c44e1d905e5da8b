"""
RestoreFlow

Restore → Enhance → Animate old photos with hosted fal.ai models:
  API      three thin routes forwarding to the provider (upload, restore, generate-video)
  Workflow client-side controller that sequences them for one session
"""

__version__ = "0.1.0"
