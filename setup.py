from pathlib import Path
from setuptools import setup

root_dir = Path(__file__).parent
with open(root_dir / "README.md") as f:
    readme = f.read()

extras_require = {
    "dev": ["pytest", "nox", "ruff", "mypy"],
}

setup(
    name="pdfdom",
    version="0.1.0",
    packages=["pdfdom"],
    package_data={"pdfdom": ["py.typed"]},
    install_requires=[
        "pdfminer.six >= 20231228",
        "charset-normalizer >= 2.0.0",
        "fonttools >= 4.38.0",
        "Pillow >= 9.0.0",
    ],
    extras_require=extras_require,
    description="PDF to HTML converter producing absolutely positioned boxes",
    long_description=readme,
    long_description_content_type="text/markdown",
    license="MIT",
    scripts=[
        "tools/pdf2html.py",
    ],
    keywords=[
        "pdf",
        "pdf converter",
        "html",
        "dom",
    ],
    python_requires=">=3.10",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Programming Language :: Python :: 3 :: Only",
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Text Processing :: Markup :: HTML",
    ],
)
