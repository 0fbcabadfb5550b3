"""Neural ODE image classifier trained on MNIST with PyTorch Lightning."""

__version__ = "0.0.1"
