"""
CodePort: batch conversion of multi-file projects through an LLM.

Files are summarized, classified into a sequential and a parallel lane,
converted through a compiler-checked retry cycle, and finally made to agree
on symbol names by a global synthesis pass.
"""

__version__ = "0.1.0"
