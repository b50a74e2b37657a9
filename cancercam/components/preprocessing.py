# cancercam/components/preprocessing.py

import sys

import numpy as np
import torch
from PIL import Image
from torchvision.transforms import InterpolationMode
from torchvision.transforms import functional as TF

from cancercam.constants import inference_pipeline as ip
from cancercam.exception.exception import ShapeMismatchError
from cancercam.utils.image_ops import read_image_from_bytes


def image_to_tensor(rgb_img: Image.Image, image_size: int = ip.IMAGE_SIZE) -> torch.Tensor:
    """
    RGB image -> [1, image_size, image_size, 3] float32 in [0, 1].

    Resize happens on the float pixel values (bilinear, no antialiasing) before
    the batch dim is added and the values are divided by 255. No mean/std
    normalization: the model was trained on plain [0, 1] inputs.
    """
    try:
        x = torch.from_numpy(np.asarray(rgb_img, dtype=np.float32))  # [H, W, C]
        if x.ndim != 3 or x.shape[2] != ip.IMAGE_CHANNELS:
            raise ValueError(f"Expected HxWx{ip.IMAGE_CHANNELS} pixels, got {tuple(x.shape)}")

        x = x.permute(2, 0, 1)  # [C, H, W] for torchvision
        x = TF.resize(
            x,
            [image_size, image_size],
            interpolation=InterpolationMode.BILINEAR,
            antialias=False,
        )
        x = x.permute(1, 2, 0).unsqueeze(0)  # [1, H, W, C]
        x = x / ip.PIXEL_SCALE

        # float rounding in the interpolation can overshoot by an ulp
        return x.clamp_(0.0, 1.0).contiguous()

    except Exception as e:
        raise ShapeMismatchError(e, sys)


def preprocess(image_bytes: bytes, image_size: int = ip.IMAGE_SIZE) -> torch.Tensor:
    return image_to_tensor(read_image_from_bytes(image_bytes), image_size)
