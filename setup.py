
from setuptools import setup, find_packages

setup(
    name="hidden_game_player",
    version="0.1",
    description="Minimax and MCTS search engines for two-player hidden-information games",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "tqdm",
    ],
    extras_require={
        "nn": ["torch"],
        "test": ["pytest", "torch"],
    },
)
