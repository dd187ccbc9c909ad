"""Entity store backends, locks and file storage."""
