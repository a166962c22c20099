"""
Displacement mockup compositing core.

Composites a design onto a mockup photograph with a displacement map,
offset/scale/rotation transforms and a multiply or straight alpha blend.
"""
