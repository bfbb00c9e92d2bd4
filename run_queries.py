import sys

from zbooks_toolbag.query_runner import main

# Runs the whole books query catalog against MONGODB_ATLAS_URI.
# Note: this updates one price and deletes one book.
sys.exit(main())
