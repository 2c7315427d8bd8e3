"""
Query engines operating on ingested alignments.
"""
