"""
fluency: adaptive practice scheduling for fact-drilling quizzes.

Decides which item to drill next, how automatic each item is, and which
group of items to focus on, from a history of response speed and accuracy.
"""

__version__ = "1.0.0"
