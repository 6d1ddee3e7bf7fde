"""
Deployer Core Package
Pipeline stages, result models and the failure taxonomy
"""

from .errors import (
    ArtifactNotFound,
    ConnectionLost,
    DeploymentError,
    DeploymentFailed,
    InvalidArtifact,
    NoSignerAvailable,
    SubmissionError,
)
from .models import DeploymentRequest, DeploymentResult, PipelineOutcome, PipelineState

__all__ = [
    'ArtifactNotFound',
    'ConnectionLost',
    'DeploymentError',
    'DeploymentFailed',
    'InvalidArtifact',
    'NoSignerAvailable',
    'SubmissionError',
    'DeploymentRequest',
    'DeploymentResult',
    'PipelineOutcome',
    'PipelineState',
]
