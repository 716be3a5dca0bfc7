from dataclasses import dataclass

# Sector size the medium is read in; every block but the last is this long.
BLOCK_SIZE = 512

@dataclass(frozen=True)
class FileSignature:
    name: str
    ext: str
    header: bytes                          # must be at the very start of a block
    footer: bytes                          # must be the last bytes of a block

    def starts(self, block: bytes) -> bool:
        return block.startswith(self.header)

    def ends(self, block: bytes) -> bool:
        # short blocks cannot hold a footer
        if len(block) < len(self.footer):
            return False
        return block.endswith(self.footer)

JPEG = FileSignature(
    name="jpeg",
    ext="jpg",
    header=b"\xFF\xD8\xFF",
    footer=b"\xFF\xD9"
)
