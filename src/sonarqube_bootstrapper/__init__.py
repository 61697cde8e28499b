"""Pre/post build bootstrapper for SonarQube MSBuild analysis."""

__version__ = "0.1.0"
