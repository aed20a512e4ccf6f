"""
The `packaging` sub-package contains the stages that assemble a Debian
binary package.

This includes:
- Computing the md5sums checksum manifest for the file entries.
- Rendering the control file from a package descriptor.
- Packing the control and data trees into gzip-compressed tar archives.
- Wrapping everything into the outer ar container, in the order dpkg expects.
"""
