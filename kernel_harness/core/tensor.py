"""
Tensor allocation with explicit ownership.

Every tensor used by a test is allocated through a ``TensorAllocator`` and
released exactly once. ``TensorAllocator.scope()`` ties a group of tensors
to a ``with`` block so they are released on every exit path.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Union

import torch

Device = Union[str, torch.device]


class TensorAllocator:
    """
    Allocates tensors and keeps track of which ones are still owned.
    """

    def __init__(self, device: Device = "cpu"):
        self.device = torch.device(device)
        self._live: Dict[int, torch.Tensor] = {}
        self.allocations = 0
        self.releases = 0

    @property
    def live_count(self) -> int:
        return len(self._live)

    def allocate(
        self,
        sizes: Sequence[int],
        dtype: torch.dtype = torch.float32,
        device: Optional[Device] = None,
    ) -> torch.Tensor:
        """
        Allocate an uninitialized tensor.

        Args:
            sizes: Per-dimension sizes, e.g. ``(features, batch)``
            dtype: Element type
            device: Target device (defaults to the allocator's)

        Returns:
            A tensor owned by this allocator until ``release()``
        """
        if any(int(s) < 0 for s in sizes):
            raise ValueError(f"negative dimension in {tuple(sizes)}")
        tensor = torch.empty(
            tuple(int(s) for s in sizes),
            dtype=dtype,
            device=device if device is not None else self.device,
        )
        self._live[id(tensor)] = tensor
        self.allocations += 1
        return tensor

    def release(self, tensor: torch.Tensor):
        """Give back a tensor. Releasing twice, or a foreign tensor, is an error."""
        if self._live.pop(id(tensor), None) is None:
            raise ValueError("tensor is not owned by this allocator")
        self.releases += 1

    @contextmanager
    def scope(self) -> Iterator["TensorScope"]:
        """Release every tensor allocated through the scope when the block exits."""
        scope = TensorScope(self)
        try:
            yield scope
        finally:
            scope.close()


class TensorScope:
    """Tensors allocated for one sub-case."""

    def __init__(self, allocator: TensorAllocator):
        self.allocator = allocator
        self._owned: List[torch.Tensor] = []

    def allocate(self, sizes: Sequence[int], dtype: torch.dtype = torch.float32,
                 device: Optional[Device] = None) -> torch.Tensor:
        tensor = self.allocator.allocate(sizes, dtype=dtype, device=device)
        self._owned.append(tensor)
        return tensor

    def close(self):
        while self._owned:
            self.allocator.release(self._owned.pop())


def populate(
    tensor: torch.Tensor,
    low: float,
    high: Optional[float] = None,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Fill a tensor in place.

    Args:
        tensor: Tensor to fill
        low: Constant value, or lower bound of the uniform range
        high: Upper bound of the uniform range; None fills with ``low``
        generator: Source of randomness, for reproducible fills

    Returns:
        The same tensor
    """
    with torch.no_grad():
        if high is None:
            tensor.fill_(low)
        else:
            if high < low:
                raise ValueError(f"empty range [{low}, {high}]")
            if generator is not None and generator.device != tensor.device:
                # Generators are device bound; draw on the generator's device.
                values = torch.empty(tensor.shape, dtype=tensor.dtype, device=generator.device)
                values.uniform_(low, high, generator=generator)
                tensor.copy_(values)
            else:
                tensor.uniform_(low, high, generator=generator)
    return tensor
