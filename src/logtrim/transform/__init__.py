"""
Reduces a folder of archived log bundles to their latest day's logs.

It has:
- a storage that knows the layout of the input and output folders
- an archive transformer that selects and concatenates the entries of a single archive,
recording an error report when that fails
- a batch transformer that runs the archive transformer for every archive in parallel,
skipping those that already have an output
"""
