from twinseek.core.models import DuplicatePolicy, HashAlgorithm

POLICY_ALIASES = {
    "metadata": DuplicatePolicy.METADATA,
    "name-size": DuplicatePolicy.METADATA,
    "verified": DuplicatePolicy.VERIFIED,
    "content": DuplicatePolicy.CONTENT,
}

POLICY_CHOICES = list(POLICY_ALIASES.keys())

POLICY_HELP_TEXT = (
    "How exact duplicates are decided:\n"
    "  metadata   : Same file name and size (fastest, no file reads)\n"
    "  verified   : Same file name and size, confirmed by content hash\n"
    "  content    : Same size and content hash, any file name\n"
    "Example    : %(prog)s -i ~/Pictures /mnt/backup --policy verified\n"
)

HASH_ALGORITHM_ALIASES = {
    "dhash": HashAlgorithm.DHASH,
    "dhash-legacy": HashAlgorithm.DHASH_LEGACY,
    "phash": HashAlgorithm.PHASH,
}

HASH_ALGORITHM_CHOICES = list(HASH_ALGORITHM_ALIASES.keys())

HASH_ALGORITHM_HELP_TEXT = (
    "Perceptual hash used to pre-select candidate pairs:\n"
    "  dhash        : Difference hash on a 9x8 grid (default)\n"
    "  dhash-legacy : Difference hash compatible with earlier releases\n"
    "  phash        : DCT-based perceptual hash\n"
)

DUPLICATES_EPILOG_TEXT = """
Examples:
  Find files with the same name and size in two folders
  %(prog)s -i ~/Pictures /mnt/backup/Pictures

  Confirm every match by content and show at most 500 files
  %(prog)s -i ~/Pictures --policy verified --limit 500

  Find renamed copies too
  %(prog)s -i ~/Downloads --policy content
"""

SIMILAR_EPILOG_TEXT = """
Examples:
  Group visually similar images (92%% similarity by default)
  %(prog)s -i ~/Pictures

  Be stricter and use phash for the pre-filter
  %(prog)s -i ~/Pictures --similarity 97 --algorithm phash

  Only show the 10 most similar pairs
  %(prog)s -i ~/Pictures --closest 10
"""
