"""Print a bcrypt hash for ADMIN_PASSWORD_HASH.

Usage: cvl-make-admin-hash <password>   (or set ADMIN_PASSWORD)
"""

import os
import sys
from typing import List, Optional

from services.auth import BCRYPT_ROUNDS, hash_password


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    password = args[0] if args else os.environ.get("ADMIN_PASSWORD")
    if not password:
        print(
            "Usage: cvl-make-admin-hash <motdepasse>  (ou env ADMIN_PASSWORD)",
            file=sys.stderr,
        )
        return 1
    print(hash_password(password, rounds=BCRYPT_ROUNDS))
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
