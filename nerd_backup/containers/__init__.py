"""Container runtime access for nerd-backup."""

from .runtime import AttachedContainer, ContainerRuntime, DockerRuntime, Volume

__all__ = ["AttachedContainer", "ContainerRuntime", "DockerRuntime", "Volume"]
