from setuptools import setup, find_packages

setup(
    name="quorum-wallet",
    version="0.1.0",
    description="M-of-N multi-party authorization wallet (engine, CLI and API)",
    python_requires=">=3.9",
    packages=find_packages(include=["quorum", "quorum.*"]),
    install_requires=["pyyaml>=6.0.0"],
    extras_require={
        "api": ["fastapi>=0.110.0", "uvicorn>=0.23.0"],
        "dev": ["pytest>=7.4.0", "fastapi>=0.110.0", "uvicorn>=0.23.0", "httpx>=0.24.0"],
    },
    entry_points={"console_scripts": ["quorum=quorum.cli:main"]},
    keywords=["multisig", "authorization", "approval", "threshold", "cli"],
    license="Apache-2.0",
)
