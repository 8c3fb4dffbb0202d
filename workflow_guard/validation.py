'''
This module is for webhook signature validation.
'''

import hmac
import hashlib

from workflow_guard.errors import ValidationError

# X-Hub-Signature-256 carries sha256, the legacy X-Hub-Signature carries sha1
SUPPORTED_DIGESTS = {
    "sha256": hashlib.sha256,
    "sha1": hashlib.sha1,
}


def validate_signature(secret: str, signature_header: str | None, data: bytes):
    '''
    Given params:

    secret: str,
    signature_header: str | None,
    data: bytes,

    raise ValidationError if validation fails.
    Otherwise return with nothing.
    '''
    if not signature_header:
        raise ValidationError("missing signature header")

    sha_name, sep, github_signature = signature_header.partition('=')
    if not sep or not github_signature:
        raise ValidationError("invalid signature header")

    digestmod = SUPPORTED_DIGESTS.get(sha_name)
    if digestmod is None:
        raise ValidationError("invalid signature header")

    local_signature = hmac.new(secret.encode('utf-8'), msg=data, digestmod=digestmod)

    if not hmac.compare_digest(local_signature.hexdigest(), github_signature):
        raise ValidationError("invalid signature")
