#!/usr/bin/env python3
"""Setup script for zFTP Connector - submit z/OS jobs over the FTP JES interface"""

from setuptools import setup, find_packages

# Package metadata
NAME = "zftp-connector"
VERSION = "1.0.0"
DESCRIPTION = "Submit z/OS batch jobs over FTP, wait for them and collect their completion codes"
LONG_DESCRIPTION = """
zFTP Connector runs mainframe batch jobs as a pipeline step through:
- JCL submission via the z/OS FTP server JES interface (SITE FILETYPE=JES)
- Polling of the JES spool until the job finishes or a deadline passes
- Retrieval of the job log
- Extraction of RC, ABEND or JCL error from the spool listing

Only the FTP-to-JES gateway dialect is spoken; no native JES API is used.
"""

# Python requirements
REQUIRES = [
    "pydantic>=2.5.0",
    "pyyaml>=6.0",
    "python-dotenv>=1.0.0",
    "click>=8.1.0",
    "rich>=13.0.0",
]


# Main setup
setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    author="zFTP Connector Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "*.tests", "*.tests.*", "tests.*"]),
    py_modules=["cli"],
    install_requires=REQUIRES,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=5.0",
            "mypy>=1.0",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "zftp-submit=cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Topic :: System :: Distributed Computing",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="mainframe zos jes jcl ftp batch ci",
)
