"""
Harness configuration.
"""

from dataclasses import dataclass

import torch

SUPPORTED_DEVICES = ("cpu", "cuda")


@dataclass
class HarnessConfig:
    """Configuration for a harness run.

    Attributes:
        device: Torch device the bundled engine runs on ('cpu' or 'cuda')
        seed: Random seed for reproducible inputs and parameters
        verbose: Whether components print progress lines
    """
    device: str = 'cpu'
    seed: int = 42
    verbose: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.device not in SUPPORTED_DEVICES:
            raise ValueError(f"unknown device '{self.device}', expected one of {SUPPORTED_DEVICES}")
        if self.device == 'cuda' and not torch.cuda.is_available():
            print("Warning: CUDA not available, falling back to CPU")
            self.device = 'cpu'

    @property
    def device_name(self) -> str:
        """Catalog name of the tested device, e.g. 'device_cpu'."""
        return f"device_{self.device}"

    def set_seed(self):
        """Seed torch for reproducibility."""
        torch.manual_seed(self.seed)
        if torch.cuda.is_available():
            torch.cuda.manual_seed_all(self.seed)
