from setuptools import find_packages, setup

# Installation en mode développement :
#   pip install -e .[test]
# Lancement de l'API :
#   stockcount-server --reload

setup(
    name='stockcount',
    version='1.0.0',
    description="Toma de inventario físico : existences théoriques par almacén, exports Excel/PDF",
    packages=find_packages(include=['stockcount', 'stockcount.*']),
    python_requires='>=3.10',
    install_requires=[
        'fastapi>=0.110',
        'uvicorn>=0.27',
        'pydantic>=2.5',
        'reportlab>=4.0',
        'openpyxl>=3.1',
        'PyJWT>=2.8',
    ],
    extras_require={
        'test': ['pytest>=7.4', 'httpx>=0.25'],
    },
    entry_points={
        'console_scripts': ['stockcount-server=stockcount.__main__:main'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Framework :: FastAPI',
    ],
)
