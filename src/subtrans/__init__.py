"""
Subtitle Translator - token-batched SRT translation through a remote LLM.

A pipeline for:
- Parsing SRT documents into segments
- Packing segments into token-bounded groups
- Translating each group with retry, quota cool-down and recursive splitting
- Reassembling an aligned, renumbered SRT document
"""

__version__ = "0.1.0"
