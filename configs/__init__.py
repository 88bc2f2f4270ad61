"""Configuration package for exercise pose analysis."""
from configs.config import (
    PoseAnalysisConfig,
    DeviceConfig,
    ModelConfig,
    SamplingConfig,
    JointConfig,
    ScoringConfig,
    VideoStandardsConfig,
    OutputConfig,
    get_fast_config,
    get_accurate_config,
)
