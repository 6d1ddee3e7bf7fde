"""
Deployment Errors
Failure taxonomy for the deployment pipeline
"""


class DeploymentError(Exception):
    """Base class for every failure the pipeline can report"""


class NoSignerAvailable(DeploymentError):
    """The environment exposes no account that can sign the deployment"""


class ArtifactNotFound(DeploymentError):
    """No compiled artifact matches the requested contract name"""


class InvalidArtifact(ArtifactNotFound):
    """An artifact exists but cannot be deployed (missing ABI or bytecode, abstract contract)"""


class SubmissionError(DeploymentError):
    """The creation transaction could not be signed or broadcast"""


class DeploymentFailed(DeploymentError):
    """The creation transaction was reverted or dropped by the network"""


class ConnectionLost(DeploymentError):
    """The connection to the node failed while the pipeline needed it"""
