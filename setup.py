"""Setup configuration for the AWS AutoScaling client binding."""

from pathlib import Path
from setuptools import find_packages, setup

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

requirements_path = Path(__file__).parent / "requirements.txt"
if requirements_path.exists():
    with open(requirements_path, encoding="utf-8") as f:
        requirements = [
            line.strip()
            for line in f
            if line.strip() and not line.startswith("#")
        ]

    # Split development and test dependencies out of install_requires
    install_requires = []
    extras_require = {
        "dev": [],
        "test": [],
    }

    for req in requirements:
        if any(dev_keyword in req.lower() for dev_keyword in ["mypy", "types-", "pytest", "ruff", "black"]):
            if "pytest" in req:
                extras_require["test"].append(req)
            else:
                extras_require["dev"].append(req)
        else:
            install_requires.append(req)
else:
    install_requires = [
        "requests>=2.28.0",
        "lxml>=4.9.0",
        "PyYAML>=6.0",
    ]
    extras_require = {"test": ["pytest>=7.0.0"]}

setup(
    name="aws-autoscaling-binding",
    version="1.0.0",
    description="Signed Query API client and in-memory mock for AWS AutoScaling",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration",
        "Topic :: Software Development :: Libraries",
    ],
    keywords="aws autoscaling ec2 client mock",
    zip_safe=False,
)
