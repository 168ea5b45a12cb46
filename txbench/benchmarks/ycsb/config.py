"""Default parameters for the transactional YCSB workload."""

# Keys in the table before scaling; table size is base size * scale factor.
DEFAULT_BASE_TABLE_SIZE = 1000

DEFAULT_SCALE_FACTOR = 1.0

# 0 is uniform; values approaching 1 concentrate accesses on low keys.
DEFAULT_ZIPF_THETA = 0.0

# Point reads/updates issued inside each transaction.
DEFAULT_OPERATION_COUNT = 1

# Probability that an operation is an update rather than a read.
DEFAULT_UPDATE_RATIO = 0.0

DEFAULT_THREAD_COUNT = 1

# Wall-clock length of the measurement window, in seconds.
DEFAULT_DURATION_S = 10.0

# Rows per transaction while populating the table.
POPULATE_BATCH_SIZE = 1000

# Value written for every key during population, and by every update.
POPULATE_VALUE = "a"
UPDATE_VALUE = "z"
