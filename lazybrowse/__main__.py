"""Module entrypoint for ``python -m lazybrowse``.

Nested pagers started by the grep and fmt filters run through this path.
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
