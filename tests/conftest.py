import sys
from pathlib import Path

# Run against the source tree without installing; toy games live beside the tests
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))
sys.path.insert(0, str(Path(__file__).parent))
