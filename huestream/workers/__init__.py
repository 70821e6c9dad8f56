from .send_pipeline import SendPipeline

__all__ = ["SendPipeline"]
