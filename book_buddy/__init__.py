"""
Book Buddy core package.

The ``ingestion`` subpackage turns an uploaded book file into an ordered set
of text chunks (parse -> chunk -> persist) behind a small processing state
machine. The ``qa`` subpackage answers questions about a processed book by
scoring chunks lexically and handing the best ones to an external text
generator.
"""
