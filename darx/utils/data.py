"""
    Dataset utilities for PyTorch.

    This file is part of Darx.

    Darx is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    Darx is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with Darx.  If not, see <https://www.gnu.org/licenses/>.
"""
from typing import List, Tuple, Dict, Callable, Optional
from torch.utils.data.dataset import Dataset, ConcatDataset
from numpy import ndarray
from .. import File


class DarxDataset(Dataset):
    """
    Represent a PyTorch Dataset where each sample is stored in its own darx archive.
    """
    def __init__(self, file_paths: List[str], keys: List[str], process_funcs: Optional[Dict[str, Callable]] = None):
        """
        Create a new `Dataset` object.
        :param file_paths: paths to the darx archives, one per sample
        :param keys: names of the tensors to retrieve from each archive
        :param process_funcs: functions applied to the arrays, by tensor name
        """
        self.file_paths = list(file_paths)
        self.keys = keys
        self.process_funcs = process_funcs or dict()

    def __getitem__(self, item: int) -> Tuple[ndarray, ...]:
        """
        Access the sample at the specified index
        :param item: index of the sample
        :return: tuple of arrays
        """
        with File(self.file_paths[item], 'r') as darx_file:
            arrays = [darx_file.get_array(key) for key in self.keys]

        return tuple(
            self.process_funcs[key](array) if key in self.process_funcs else array
            for key, array in zip(self.keys, arrays)
        )

    def __len__(self) -> int:
        """
        Returns the length of the dataset.
        :return: length of the dataset
        """
        return len(self.file_paths)


class DarxConcatDataset(ConcatDataset):
    """
    Represent a concatenation of darx datasets.
    """
    def __init__(self, datasets: List[DarxDataset]):
        """
        Concatenate several darx datasets
        :param datasets: list of darx datasets
        """
        super().__init__(datasets)
