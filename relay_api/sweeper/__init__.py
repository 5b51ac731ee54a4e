from .sweeper_models import SweeperConfig, SweeperStats, SweepResult
from .retry_sweeper import RetrySweeper

__all__ = ["RetrySweeper", "SweeperConfig", "SweeperStats", "SweepResult"]
