"""packforge: cross-platform package-build orchestrator.

Loads a project description (components, build dependencies, settings
inherited from upstream projects), resolves what must be built, and plans
the ordered commands that turn a built tree into a signed, notarized
package:

  - Component build-dependency resolution (depth-first, cycle-safe)
  - Last-write-wins settings with live-upstream and snapshot inheritance
  - Checksummed settings snapshots (YAML + SHA-1)
  - Remote or local extra-file signing with a connectivity probe
  - macOS stage pipeline: pkgbuild, productbuild, dmg, codesign, notarize
  - Debian, RPM and Windows package plans
"""

__version__ = "0.1.0"
__description__ = "Cross-platform package-build orchestrator"

from packforge.core.project import Project
from packforge.dsl import load_description, load_project
from packforge.platforms import load_platform

__all__ = ["Project", "load_description", "load_project", "load_platform", "__version__"]
