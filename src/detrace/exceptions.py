class DecodeError(Exception):
    """

    Raised by a single decoder when data it nominally matched (selector or topic) cannot be interpreted,
    ie a ``Transfer`` log whose data payload is truncated.  Scoped to one decoder/node/log pair; the
    orchestrator records it as a diagnostic and moves on to the next decoder.

    """


class ChainAccessError(Exception):
    """

    Raised when an external chain read (``eth_getStorageAt``) fails.  Decoders usually treat this as
    "cannot decode" and decline instead of failing the pass.

    """


class MalformedTraceError(Exception):
    """
    Raised when a normalized trace violates the structural invariants required to assemble the output tree.
    The following conditions will result in this error being raised:

        * A ``child_order`` entry references a log or child index that is out of range
        * ``child_order`` does not reference every log and every child exactly once
        * A node id repeats inside the tree (cyclic or duplicated frames)
        * A log index repeats inside the tree

    Fatal for the whole decode pass.
    """
