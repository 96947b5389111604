"""On-disk format constants shared by the log and its readers."""

# Marks a buffer reserved for an in-memory operation that failed to
# complete. It is skipped during recovery.
FAILED_FLUSH = 0

# Marks a buffer holding valid data stored inline.
INLINE_FLUSH = 1

# Marks a buffer holding valid data stored as an external blob.
BLOB_FLUSH = 2

# Marks padding that fills out the rest of a segment before sealing it.
SEGMENT_PAD = 3

# Marks a buffer holding the Lsn of the last write in an atomic batch.
BATCH_MANIFEST = 4

# Written as a canary to help detect torn writes.
EVIL_BYTE = 6

# Length of every log message header.
MSG_HEADER_LEN = 17

# Length of every log segment header.
SEG_HEADER_LEN = 20

# Size of an Lsn on disk, in bytes.
LSN_SIZE = 8

# Inline payload of a message whose value lives in an external blob.
BLOB_INLINE_LEN = LSN_SIZE

# Inline payload of a batch manifest: the last Lsn of the batch.
BATCH_MANIFEST_INLINE_LEN = LSN_SIZE

# Items larger than this fraction of an io buffer are stored as blobs.
MINIMUM_ITEMS_PER_SEGMENT = 4

# Upper bound on space amplification that testing should never exceed.
MAX_SPACE_AMPLIFICATION = 20.0