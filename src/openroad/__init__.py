"""OpenRoad - contributor roadmaps for GitHub repositories.

Given a repository URL, OpenRoad fetches the README and a depth-bounded file
tree, asks an analysis provider for the tech stack, architecture, data flow
and three suggested entry points, scores those entry points by churn and bug
frequency, and stores the resulting roadmap so repeat requests are served
from cache.
"""

__version__ = "0.1.0"
__author__ = "OpenRoad Contributors"
