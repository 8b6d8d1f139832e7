"""
Quest Graph Editor: edit quests and their prerequisite graph with a live
force-directed view.
"""

__version__ = "1.0.0"
