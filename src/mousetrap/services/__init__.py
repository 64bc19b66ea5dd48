"""Administrative operations used by the configuration commands."""
