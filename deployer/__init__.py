"""Commit Deployer: deploy a chosen commit's build output to a target path."""

__version__ = "0.1.0"
