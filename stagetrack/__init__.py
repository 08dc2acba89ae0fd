"""
StageTrack - derivation engine for staged manufacturing projects.

Subpackages:
    project_tracking  stage schema, project model, progress, date validation, edits
    milestones        events, deadlines, calendar views and exports
"""

__version__ = "1.1.0"
