"""Challenge signing for Hive ImageHoster uploads.

The image host authorises an upload by recovering the public key from a
signature over sha256("ImageSigningChallenge" || image bytes) and checking it
against the account's posting authority.

Security notes:
- Private keys are decoded in memory only; never log or print them.
"""

from .challenge import (  # noqa: F401
    SIGNING_CHALLENGE,
    SignedImage,
    image_digest,
    load_and_sign,
    read_image,
    sign_image,
)
from .keys import (  # noqa: F401
    PrivateKey,
    Signer,
    decode_signature,
    is_canonical,
    recover_public_key,
    verify_signature,
)
