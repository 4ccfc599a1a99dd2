"""
PaperMind Pipeline

Watch a OneDrive inbox folder for PDFs, extract bibliographic metadata with
PyMuPDF and Mistral, and record each document in a Notion database and an
Excel register stored next to the files.
"""

__version__ = "0.1.0"
